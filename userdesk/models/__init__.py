"""用户台数据模型."""
