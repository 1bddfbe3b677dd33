from synthload.main import main

raise SystemExit(main())
