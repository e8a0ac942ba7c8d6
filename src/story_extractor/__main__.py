from story_extractor.cli import main

main()
