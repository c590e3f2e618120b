from retarity.cli import main

main()
