# Routes package init
"""
NoteSync Backend: API Routes Package
====================================

What:  HTTP rendition of the presentation boundary.

Route Inventory:
    - notes.py:   GET    /api/notes             (note list snapshot)
                  POST   /api/notes/refresh     (fetchAll)
                  POST   /api/notes             (submitCreate)
                  DELETE /api/notes/{id}        (requestDelete)
                  GET    /api/files/{key}       (serve image blob)
    - draft.py:   GET/PATCH/DELETE /api/draft   (draft snapshot, updateDraftField, clear)
                  POST   /api/draft/image       (selectFile)
    - health.py:  GET    /health                (store health)

Routes stay thin: they translate HTTP into synchronizer calls and wrap
snapshots in response models. State lives in the NoteSynchronizer.
"""
