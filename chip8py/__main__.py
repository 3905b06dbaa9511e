import sys

from .CHIP8 import main

sys.exit(main())
