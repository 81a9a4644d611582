from smartmeet.main import main

raise SystemExit(main())
