from dirspy.cli import main

raise SystemExit(main())
