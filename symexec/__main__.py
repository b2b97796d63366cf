from symexec.cli import main

main()
