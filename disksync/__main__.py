from disksync.cli import main

main()
