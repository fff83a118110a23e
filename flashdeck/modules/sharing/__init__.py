from .controller import ShareState, SharingController, share_url

__all__ = ["ShareState", "SharingController", "share_url"]
