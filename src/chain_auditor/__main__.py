from chain_auditor.cli import main

raise SystemExit(main())
