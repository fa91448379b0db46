from config import cfg
import db_main as db
import errors as err


def validate_post(parent, subject, message, board='', name=''):
    """ Checks a submitted post, and normalizes it for the db.
    Checks run in a fixed order; the first failure is the one reported.

        Args:
            parent (str|int): id of the thread being replied to; 0 or blank for a new thread
            subject (str): required for new threads, dropped for replies
            message (str): the post body
            board (str): board slug; ignored for replies
            name (str): poster's name
        Returns:
            dict: board, parent, name, subject, message
        Raises:
            BadInput (and subclasses), ParentNotFound
    """
    message = (message or '').strip()
    if not message:
        raise err.EmptyMessage('Message is required.')
    if len(message) > cfg.post_max_length:
        raise err.MessageTooLong('Message cannot exceed %s characters.' % format(cfg.post_max_length, ','))

    parent = _parse_parent(parent)
    subject = (subject or '').strip()
    if parent == 0:
        if not subject:
            raise err.MissingSubject('Subject is required for a new thread.')
        if len(subject) > cfg.subject_max_length:
            raise err.SubjectTooLong('Subject max length is %s.' % cfg.subject_max_length)
        board = (board or '').strip() or cfg.default_board
        if board not in cfg.boards:
            raise err.InvalidBoard('Board /%s/ does not exist.' % board)
    else:
        op = db.fetch_thread_root(parent)
        if op is None:
            raise err.ParentNotFound('Parent thread does not exist.')
        # replies always live with their thread, and never keep a subject
        board = op.board
        subject = ''

    name = (name or '').strip() or cfg.default_name
    if len(name) > cfg.name_max_length:
        raise err.NameTooLong('Name max length is %s.' % cfg.name_max_length)

    return {'board'   : board,
            'parent'  : parent,
            'name'    : name,
            'subject' : subject,
            'message' : message}

def _parse_parent(parent):
    if parent is None or parent == '':
        return 0
    try:
        parent = int(parent)
    except (TypeError, ValueError):
        raise err.ParentNotFound('Parent thread does not exist.')
    if parent < 0:
        raise err.ParentNotFound('Parent thread does not exist.')
    return parent
