from interview_guide.main import main

main()
