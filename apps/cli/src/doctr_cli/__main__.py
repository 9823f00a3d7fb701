from doctr_cli.main import main

main()
