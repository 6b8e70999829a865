import redis
from rq import Queue

from .config import REDIS_URL

r = redis.Redis.from_url(REDIS_URL)
q = Queue("transactions", connection=r, default_timeout=600)
