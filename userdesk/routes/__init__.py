"""用户台 - 页面路由."""
