from .item import Item
from .user import User, DELETED_USER
from .comment import Comment, TOP_LEVEL
