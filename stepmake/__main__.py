"""
Main Program
"""

from stepmake.make import main


if __name__ == '__main__':
    main()
