from alfred_nest.cli.main import main

main()
