from force_notification.launcher import main

main()
