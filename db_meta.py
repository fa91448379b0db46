from config import cfg
import sqlalchemy
from sqlalchemy import Table, Column, Integer, String, Text, MetaData, CheckConstraint, Index
from sqlalchemy.pool import StaticPool


class DB():
    engine   = None
    slave    = None
    metadata = None
    posts    = None

    def __init__(self, maindb, slavedb=None, debug=False):
        self.engine   = sqlalchemy.create_engine(maindb, echo=debug)
        self.slave    = sqlalchemy.create_engine(slavedb) if slavedb else self.engine
        self.metadata = MetaData()

    def create_db(self):
        """ define the full schema. Nothing touches the database until init_db/reset_db """
        # threads and replies share the table; parent = 0 marks a thread root
        self.posts = Table('posts', self.metadata,
                Column('id'        , Integer     , primary_key=True),
                Column('board'     , String(20)  , nullable=False, default=cfg.default_board),
                Column('parent'    , Integer     , nullable=False, default=0),
                Column('name'      , String(cfg.name_max_length)   , nullable=False, default=cfg.default_name),
                Column('subject'   , String(cfg.subject_max_length), nullable=False, default=''),
                Column('message'   , Text        , nullable=False),
                Column('image'     , String(255) , nullable=False, default=''), # max length of linux filenames
                Column('thumb'     , String(255) , nullable=False, default=''),
                Column('timestamp' , Integer     , nullable=False), # unix seconds
                Column('bumped'    , Integer     , nullable=False),
                CheckConstraint("subject = '' OR parent = 0", name='reply_has_no_subject'),
                Index('ix_posts_board_parent_bumped', 'board', 'parent', 'bumped'))

    def init_db(self):
        """ create any missing tables """
        self.metadata.create_all(self.engine)

    def reset_db(self):
        """ drop all tables, create all tables. """
        self.metadata.drop_all(self.engine)
        self.metadata.create_all(self.engine)

    def create_test_db(self, uri="sqlite://"):
        """ swaps in a fresh db for testing; in-memory sqlite by default """
        if uri == "sqlite://":
            self.engine = sqlalchemy.create_engine(uri,
                                connect_args={'check_same_thread': False},
                                poolclass=StaticPool)
        else:
            self.engine = sqlalchemy.create_engine(uri)
        self.slave = self.engine
        self.metadata = MetaData()
        self.create_db()
        self.reset_db()


class Post(object):
    """ A single post row. Threads and replies are both Posts.
    The invariants of a post are checked here, so nothing downstream
    (rendering, regeneration) has to second-guess a row.
    """
    __slots__ = ('id', 'board', 'parent', 'name', 'subject', 'message',
                 'image', 'thumb', 'timestamp', 'bumped')

    def __init__(self, id, board, parent, name, subject, message,
                 image='', thumb='', timestamp=0, bumped=0):
        if parent and subject:
            raise ValueError('post %s: replies cannot carry a subject' % id)
        if parent and parent == id:
            raise ValueError('post %s: a post cannot be its own thread' % id)
        if not image and thumb:
            raise ValueError('post %s: thumbnail without an image' % id)
        self.id        = id
        self.board     = board
        self.parent    = parent
        self.name      = name
        self.subject   = subject
        self.message   = message
        self.image     = image or ''
        self.thumb     = thumb or ''
        self.timestamp = timestamp
        self.bumped    = bumped

    @classmethod
    def from_row(cls, row):
        """ builds a Post from a row mapping (or any dict with the same keys) """
        return cls(**{k: row[k] for k in cls.__slots__})

    @property
    def is_op(self):
        return self.parent == 0

    @property
    def thread_id(self):
        return self.id if self.is_op else self.parent

    @property
    def is_video(self):
        return self.image.rsplit('.', 1)[-1].lower() in cfg.video_formats if self.image else False

    def __repr__(self):
        return '<Post %s /%s/ parent=%s>' % (self.id, self.board, self.parent)


db = DB(cfg.master, cfg.slave, cfg.debug)
db.create_db()
