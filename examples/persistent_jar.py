"""
Example: Cookies that survive a restart

Response cookies with Max-Age/Expires are cached per host and written to
CookiePrefsFile.json. A second store opened on the same directory sees them
without any request being made.
"""

import tempfile

from cookiekeep import PersistentCookieJar, PersistentCookieStore


def first_run(directory: str) -> None:
    with PersistentCookieStore.open(directory) as store:
        jar = PersistentCookieJar(store)
        # Headers as returned by any HTTP client response
        jar.set_from_headers(
            [
                ("Set-Cookie", "sid=abc; Max-Age=3600; Path=/; Secure; HttpOnly"),
                ("Set-Cookie", "tmp=1"),  # session cookie, not kept
            ],
            "https://example.com/login",
        )
        print(f"Cookie header: {jar.cookie_header('https://example.com/')}")


def second_run(directory: str) -> None:
    with PersistentCookieStore.open(directory) as store:
        jar = PersistentCookieJar(store)
        print(f"After restart: {jar.cookie_header('https://example.com/')}")
        for cookie in store.get_all():
            print(f"  {cookie!r} expires_at={cookie.expires_at}")


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as directory:
        first_run(directory)
        second_run(directory)
