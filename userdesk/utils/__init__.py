"""用户台通用工具模块."""
