from flask_marshmallow import Marshmallow
from flask_mail import Mail

from .store import RedisStore

ma = Marshmallow()
mail = Mail()
store = RedisStore()
