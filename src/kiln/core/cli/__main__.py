from kiln.core.cli.main import main

main()
