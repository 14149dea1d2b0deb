from awsauthorize.cli import main

main()
