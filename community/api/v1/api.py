"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from community.api.v1.endpoints import (articles, auth, blog, comments, health,
                                        news, tips, users)

api_router = APIRouter()

# Registration, confirmation, login / logout
api_router.include_router(auth.router)

# Directory, presence, roles
api_router.include_router(users.router)

# Content
api_router.include_router(blog.router)
api_router.include_router(articles.router)
api_router.include_router(comments.router)
api_router.include_router(news.router)
api_router.include_router(tips.router)

api_router.include_router(health.router)
