# Services package init
"""
PlaceHub Backend: Services Layer
=================================

Service Inventory:
    - ObjectStorage (abstract): contract for the remote image host
    - CloudinaryStorage: ObjectStorage on the Cloudinary SDK
    - UploadService: request-boundary checks and reading of image parts
    - PlaceService: create / update / delete workflows across storage and DB
"""
