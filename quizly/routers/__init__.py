from .quiz import router as quiz_router
from .whitelist import router as whitelist_router

routes = [
    quiz_router,
    whitelist_router,
]
