#!/usr/bin/env python3
"""
BF6 Stats Bot - Entry Point

Telegram bot that posts Battlefield 6 stats for tracked players.
The actual implementation is in the bf6bot package.
"""

if __name__ == "__main__":
    from bf6bot import main
    main()
