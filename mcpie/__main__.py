from mcpie.main import main

main()
