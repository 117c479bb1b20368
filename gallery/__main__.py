from gallery.application.pipeline import main

main()
