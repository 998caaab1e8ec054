"""Route table of the sample application."""

from __future__ import annotations

from specforge.routes import RouteDescriptor
from tests.helpers.sample_app import controllers

ROUTES: list[RouteDescriptor] = [
    RouteDescriptor.for_handler(
        controllers.UserController,
        "index",
        uri="api/users",
        methods=("GET", "HEAD"),
        middleware=("api",),
        name="users.index",
    ),
    RouteDescriptor.for_handler(
        controllers.UserController, "show", uri="api/users/{id}", middleware=("api",)
    ),
    RouteDescriptor.for_handler(
        controllers.UserController,
        "store",
        uri="api/users",
        methods=("POST",),
        middleware=("api", "auth"),
    ),
    RouteDescriptor.for_handler(
        controllers.UserController,
        "update",
        uri="api/users/{id}",
        methods=("PUT", "PATCH"),
        middleware=("api", "auth"),
    ),
    RouteDescriptor.for_handler(
        controllers.UserController,
        "destroy",
        uri="api/users/{id}",
        methods=("DELETE",),
        middleware=("api", "auth"),
    ),
    RouteDescriptor.for_handler(controllers.PostController, "index", uri="api/posts"),
    RouteDescriptor.for_handler(controllers.PostController, "recent", uri="api/posts/recent"),
    RouteDescriptor.for_handler(controllers.CommentController, "index", uri="api/comments"),
    RouteDescriptor.for_handler(
        controllers.AuthorController, "show", uri="api/authors/{author_id}"
    ),
    RouteDescriptor.for_handler(controllers.AuthorController, "tree", uri="api/nodes"),
    RouteDescriptor.for_handler(
        controllers.ProfileController, "store", uri="api/profiles", methods=("POST",)
    ),
    RouteDescriptor.for_handler(
        controllers.ProfileController, "preview", uri="api/profiles/preview", methods=("POST",)
    ),
    RouteDescriptor.for_handler(
        controllers.ProfileController, "lookup", uri="api/profiles/{slug?}"
    ),
    RouteDescriptor.for_handler(controllers.ReportController, "export", uri="api/reports/export"),
    RouteDescriptor.for_handler(
        controllers.ReportController, "create", uri="api/reports", methods=("POST",)
    ),
    RouteDescriptor.for_handler(
        controllers.ReportController, "broken", uri="api/reports/broken", methods=("POST",)
    ),
    RouteDescriptor.for_handler(controllers.SearchController, "search", uri="api/search"),
    RouteDescriptor.for_handler(
        controllers.BillingController, "show", uri="api/invoices/{invoice_id}"
    ),
    RouteDescriptor.for_handler(controllers.health, uri="health"),
    RouteDescriptor.for_handler(controllers.ping, uri="ping"),
]
