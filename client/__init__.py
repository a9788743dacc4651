"""client/ -- Async client SDK for the boilerplate API.

    storage      -- where the access token lives between calls (and restarts)
    http         -- SessionStoreClient: httpx wrapper over /api/v1
    coordinator  -- SessionStateCoordinator: loading/authenticated/unauthenticated
    forms        -- SignUpForm / SignInForm: validate, dispatch, capture errors
    gate         -- ProtectedViewGate: render / loading / redirect decision

Layer rule: client/ talks to the server over HTTP only. It imports core/ for
shared enums and never imports auth/, records/, api/, or web/.
"""
