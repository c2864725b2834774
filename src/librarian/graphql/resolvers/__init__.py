"""Resolver package for the GraphQL schema.

Each module holds the resolvers of one catalog entity; the root types in
`queries`, `mutations` and `subscriptions` only delegate to them.
"""
