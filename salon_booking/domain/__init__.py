"""Domain packages: one per area of the API (schemas, repository, service, router)"""
