from milksync.cli import main

main()
