"""HTTP interface (optional `api` extra)"""
