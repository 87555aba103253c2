"""
Dual-Edition Minecraft AFK Client

Keeps a Java Edition and/or a Bedrock Edition connection alive indefinitely,
reconnecting on failure, and relays operator chat into whichever edition is
connected.
"""

__version__ = "1.0.0"
__description__ = "Dual-edition Minecraft AFK presence client"
