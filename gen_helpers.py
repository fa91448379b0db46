from config import cfg
import errors as err

import os
import glob
import shutil
import logging
from collections import namedtuple

import filetype
from PIL import Image

log = logging.getLogger('chan.upload')

# transport status of an upload, as reported by whatever received it
OK       = 0
PARTIAL  = 3 # client went away mid-upload
NO_FILE  = 4 # the form was sent without a file

Media = namedtuple('Media', ['image', 'thumb'])


class Upload(object):
    """ An uploaded file that has not been accepted yet.
    Either lives at a temp path, or is still an open stream.
    """
    def __init__(self, filename, path=None, stream=None, size=None, error=OK):
        self.filename = filename or ''
        self.path     = path
        self.stream   = stream
        self.error    = error
        if size is None and path and error == OK:
            size = os.path.getsize(path)
        self.size = size or 0

    @classmethod
    def from_filestorage(cls, fs):
        """ wraps a werkzeug FileStorage; a missing or nameless file means NO_FILE """
        if fs is None or not fs.filename:
            return cls('', error=NO_FILE)
        stream = fs.stream
        try:
            stream.seek(0, os.SEEK_END)
            size = stream.tell()
            stream.seek(0)
        except (OSError, ValueError):
            return cls(fs.filename, error=PARTIAL)
        return cls(fs.filename, stream=stream, size=size)

    @property
    def present(self):
        return bool(self.filename) and self.error != NO_FILE

    @property
    def extension(self):
        """ lowercased suffix without the dot; '' if there is none """
        return os.path.splitext(self.filename)[1][1:].lower()

    def save(self, dest):
        if self.path:
            shutil.move(self.path, dest)
        else:
            self.stream.seek(0)
            with open(dest, 'wb') as out:
                shutil.copyfileobj(self.stream, out)


def media_dir(board, kind):
    """ kind is 'src' or 'thumb' """
    return os.path.join(cfg.static_root, board, kind)

def allowed_formats():
    return cfg.image_formats + cfg.video_formats

def verify_file_type(path, ext):
    """ sniffs the file content instead of trusting the extension
        Args:
            path (str): file on disk
            ext (str): lowercased extension the uploader claimed
        Returns:
            bool: True if the content is the kind of file the extension promises
    """
    mime = filetype.guess_mime(path)
    if ext in cfg.image_formats:
        return mime in cfg.image_mimes
    if ext in cfg.video_formats:
        return mime in cfg.video_mimes
    return False

def save_upload(upload, postid, board):
    """ validates the upload and moves it to its final, post-id derived, name.
    Nothing is left on disk if this raises.

        Args:
            upload (Upload): the uploaded file; None is the same as no file
            postid (int): id of the post that will own the file
            board (str): board the post lives on
        Returns:
            Media: (image, thumb) filenames; None if there was no file
        Raises:
            UploadTransportError, FileTooLarge, UnsupportedType, ContentMismatch
    """
    if upload is None or not upload.present:
        return None
    if upload.error != OK:
        raise err.UploadTransportError('Error uploading file (code: %s).' % upload.error)
    if upload.size > cfg.max_file_size:
        raise err.FileTooLarge('File too large (max: %s MB).' % (cfg.max_file_size // (1024 * 1024)))

    ext = upload.extension
    if ext not in allowed_formats():
        raise err.UnsupportedType('Invalid file type: %s' % (ext or 'none'))

    srcdir = media_dir(board, 'src')
    os.makedirs(srcdir, exist_ok=True)
    newname  = '%s.%s' % (postid, ext)
    mainpath = os.path.join(srcdir, newname)
    try:
        upload.save(mainpath)
    except OSError as e:
        _remove(mainpath)
        raise err.UploadTransportError('Failed to move uploaded file.') from e

    if not verify_file_type(mainpath, ext):
        _remove(mainpath)
        raise err.ContentMismatch('Invalid file content (mime mismatch).')

    thumb = ''
    if ext in cfg.thumb_formats:
        try:
            thumb = make_thumbnail(mainpath, postid, board)
        except (OSError, Image.DecompressionBombError) as e:
            # passed the magic-byte sniff, but isn't a decodable image
            discard_media(board, postid)
            raise err.ContentMismatch('Invalid file content (unreadable image).') from e
    else:
        log.info('no thumbnail for %s; %s is not in thumb_formats', newname, ext)
    return Media(newname, thumb)

def make_thumbnail(mainpath, postid, board):
    """ writes a jpeg no bigger than the configured box, keeping the aspect ratio
        Returns:
            str: filename of the thumbnail
    """
    thumbdir = media_dir(board, 'thumb')
    os.makedirs(thumbdir, exist_ok=True)
    thumbname = '%ss.jpg' % postid
    thumbpath = os.path.join(thumbdir, thumbname)
    with Image.open(mainpath) as img:
        img.thumbnail((cfg.thumb_max_width, cfg.thumb_max_height))
        img.convert('RGB').save(thumbpath, 'JPEG', quality=cfg.thumb_quality)
    return thumbname

def discard_media(board, postid):
    """ deletes every file derived from the post id, source and thumbnail
        Returns:
            list: paths that were removed
    """
    patterns = [os.path.join(media_dir(board, 'src'), '%s.*' % postid),
                os.path.join(media_dir(board, 'thumb'), '%ss.*' % postid)]
    removed = list()
    for pattern in patterns:
        for path in glob.glob(pattern):
            _remove(path)
            removed.append(path)
    return removed

def _remove(path):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
