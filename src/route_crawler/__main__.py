from route_crawler.cli import main

raise SystemExit(main())
