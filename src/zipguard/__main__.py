from zipguard.cli import main

raise SystemExit(main())
