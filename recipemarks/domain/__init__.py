"""Recipes, and what can be learnt about them from their URL.

The interesting part is `extraction`: a recipe URL comes straight from the
user, yet the server fetches it. So

- `urls` refuses anything that is not plain http(s) to a public address,
- `fetcher` gives up after a fixed time and a fixed number of bytes,
- `metadata` reads a handful of meta tags with regular expressions instead of
  parsing the page.

Storage is a key-value `repository`; `services` glues it to extraction.
"""
