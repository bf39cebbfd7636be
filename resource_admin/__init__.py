"""资源管理后台：基于 SQLAlchemy 模型的通用增删改查处理层。"""
