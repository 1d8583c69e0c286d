from basedai.router.api.query import router as query_router

routers = [
    query_router,
]
