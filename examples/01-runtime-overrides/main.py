"""
Runtime Overrides Example

This example demonstrates how runtime handlers take priority:
1. Set up a worker with a baseline handler
2. Add a runtime handler for a new endpoint and one that overrides the baseline
3. Reset back to the baseline

No request leaves the process: unhandled traffic goes to a local stand-in.

Run: python examples/01-runtime-overrides/main.py
"""

import httpx

from mockworker import MockSettings, get, post, setup_worker

# =============================================================================
# Handlers
# =============================================================================


def get_book(request: httpx.Request) -> httpx.Response:
    book_id = request.url.path.rsplit("/", 1)[-1]
    return httpx.Response(200, json={"id": book_id, "title": "The Left Hand of Darkness"})


def post_review(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json={"status": "review stored"})


def book_unavailable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"error": "catalog offline"})


# =============================================================================
# Main
# =============================================================================


def main() -> None:
    worker = setup_worker(
        get("/book/:id", get_book),
        settings=MockSettings(on_unhandled_request="bypass"),
    )
    offline_network = httpx.MockTransport(lambda request: httpx.Response(502))

    with worker.client(base_url="https://api.example.com", real_transport=offline_network) as client:
        worker.use(post("/book/:id/reviews", post_review))
        print("POST /book/42/reviews ->", client.post("/book/42/reviews").json())
        print("GET  /book/42         ->", client.get("/book/42").json())

        worker.use(get("/book/:id", book_unavailable))
        print("GET  /book/42 (override) ->", client.get("/book/42").status_code)

        worker.reset_handlers()
        print("GET  /book/42 (after reset) ->", client.get("/book/42").status_code)
        print("POST /book/42/reviews (after reset) ->", client.post("/book/42/reviews").status_code)

    print()
    print("Handlers:", [h.display_name for h in worker.list_handlers()])


if __name__ == "__main__":
    main()
