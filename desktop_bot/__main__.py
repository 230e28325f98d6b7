from desktop_bot.cli import main

main()
