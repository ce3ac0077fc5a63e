from youcra.cli.main import main

main()
