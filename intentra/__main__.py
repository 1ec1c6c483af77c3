from intentra.cli import main

raise SystemExit(main())
