from trellis.interfaces.cli.main import main

main()
