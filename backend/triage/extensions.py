from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
import os

# Flask extensions singletons

db = SQLAlchemy()
migrate = Migrate()


def _allowed_origins() -> list[str]:
	"""Origins for the owner and staff front-ends (CORS_ALLOW_ORIGINS, comma-separated).

	The match-inquiry endpoint sets its own wildcard policy on the view.
	"""
	raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
	origins = [o.strip() for o in raw.split(",") if o.strip()]
	if origins:
		return origins
	if os.getenv("FLASK_ENV", "development").lower() == "production":
		return []
	# Local front-end dev servers
	return [
		"http://localhost:5173",
		"http://127.0.0.1:5173",
		"http://localhost:8080",
		"http://127.0.0.1:8080",
	]


cors = CORS(resources={r"/api/*": {"origins": _allowed_origins()}}, supports_credentials=False)
