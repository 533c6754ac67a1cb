"""用户台共享类型定义."""
