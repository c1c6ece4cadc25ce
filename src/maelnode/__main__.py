from maelnode.cli import main

raise SystemExit(main())
