from tagsync.cli.app import main

main()
