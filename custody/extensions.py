from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

cors = CORS()
limiter = Limiter(get_remote_address)
migrate = Migrate()
