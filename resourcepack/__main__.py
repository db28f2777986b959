"""Run the resourcepack command line tool."""

from resourcepack.tool.resourcepack import main

if __name__ == "__main__":
    main()
