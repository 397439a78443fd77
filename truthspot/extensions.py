from flask_caching import Cache
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from truthspot.services.pocketbase import PocketBase

# Initialize Flask extensions
cors = CORS()
cache = Cache()
jwt_manager = JWTManager()
pocketbase = PocketBase()
