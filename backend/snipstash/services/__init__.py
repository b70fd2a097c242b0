# Services package init
"""
SnipStash Backend — Services Layer
====================================

What:  Business rules between the routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level singleton. Every
       method takes the AsyncSession explicitly and, for user data, the
       requesting user's id; nothing reads a "current user" from ambient state.

Service Inventory:
    - IdentityService: token issuance and bearer-token → Identity resolution
    - UserService:     registration and password login
    - SnippetService:  owner-scoped snippet CRUD, memberships, usage
    - FolderService:   owner-scoped folder CRUD
    - TagService:      race-safe find-or-create and tag-set replacement
    - SearchService:   filtered, sorted, paginated snippet search
    - TagAnalytics:    per-user tag usage counts
    - auto_tagger:     rule-based tag detection (plain functions)

Services flush but never commit; the request's session dependency commits.
"""
