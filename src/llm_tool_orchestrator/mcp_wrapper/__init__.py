from .wrapper import MCPClientWrapper

__all__ = ["MCPClientWrapper"]
