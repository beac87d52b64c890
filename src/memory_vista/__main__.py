from memory_vista.cli import main

if __name__ == "__main__":
    main()
