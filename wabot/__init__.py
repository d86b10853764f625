"""
wabot - command-driven WhatsApp bot.
"""

__version__ = "1.0.0"
__logo__ = "🤖"
