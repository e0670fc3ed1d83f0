from vesting_claims.main import main

raise SystemExit(main())
