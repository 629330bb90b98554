"""核心基础设施：配置、数据库、异常、日志"""
