
class ChanError(Exception):
    status = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class e404(ChanError):
    status = 404

    def __init__(self, message="404 - Page Not Found"):
        super().__init__(message)


class DNE(ChanError):
    status = 404


class Forbidden(ChanError):
    status = 403


class BadInput(ChanError):
    status = 400


class BadMedia(ChanError):
    """ upload problems; shown on the upload rules page """
    status = 415


class RateLimited(ChanError):
    status = 429


# validation
ValidationError = BadInput

class EmptyMessage(BadInput):
    pass

class MessageTooLong(BadInput):
    pass

class MissingSubject(BadInput):
    pass

class SubjectTooLong(BadInput):
    pass

class NameTooLong(BadInput):
    pass

class InvalidBoard(BadInput):
    pass

class ParentNotFound(DNE):
    pass

class CsrfMismatch(Forbidden):
    pass


# uploads
class UploadTransportError(BadMedia):
    pass

class FileTooLarge(BadMedia):
    status = 413

class UnsupportedType(BadMedia):
    pass

class ContentMismatch(BadMedia):
    pass


# server side; logged, the user only sees a generic message
class StorageError(ChanError):
    pass

class RegenerationError(ChanError):
    pass
