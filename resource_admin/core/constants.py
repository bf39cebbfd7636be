"""常量定义：集中维护资源处理层使用的魔法字符串与状态码。"""

HTTP_STATUS_OK = 200
HTTP_STATUS_CREATED = 201
HTTP_STATUS_UNPROCESSABLE_ENTITY = 422

ACCESS_TOKEN_TYPE = "bearer"

# 表单中的删除标记字段，值不为 "0" 时在 find-one 阶段直接删除记录
DESTROY_META_NAME = "_destroy"
# 复合主键在资源 ID 中的分隔符，例如 "1,2"
PRIMARY_VALUE_SEPARATOR = ","
# 匹配任意请求的角色名
ANYONE_ROLE = "*"
# 软删除字段名
SOFT_DELETE_COLUMN = "is_deleted"
