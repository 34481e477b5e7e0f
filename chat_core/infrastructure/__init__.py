"""基础设施层：日志与本地键值存储。"""
