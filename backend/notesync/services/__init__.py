# Services package init
"""
NoteSync Backend: Services Layer
================================

What:  The synchronizer and the store clients it composes.
How:   Routes talk only to NoteSynchronizer; the synchronizer talks only to
       the RecordStore / BlobStore interfaces.

Service Inventory:
    - RecordStore, BlobStore (abstract): collaborator interfaces
    - SqlRecordStore: notes table through async SQLAlchemy
    - GraphQLRecordStore: remote listNotes/createNote/deleteNote API
    - LocalBlobStore: image files under BLOB_ROOT
    - NoteSynchronizer: note list + draft owner, fetch/create/delete/attach
"""
