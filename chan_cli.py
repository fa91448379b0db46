#!/usr/bin/env python
import click

import regen
from config import cfg
from db_meta import db
from logger import setup_logging


@click.group()
def cli():
    setup_logging()


@cli.command('init-db')
@click.option('--reset', is_flag=True, help='drop every table first; all posts are lost')
def init_db(reset):
    if reset:
        click.confirm('Drop all posts?', abort=True)
        db.reset_db()
    else:
        db.init_db()
    click.echo('database ready: %s' % db.engine.url)
    if cfg.static_pages:
        # boards without threads have no pages until something writes them
        for board in cfg.boards:
            regen.regenerate_board_pages(board)
        click.echo(regen.regenerate_home())


@cli.command()
@click.argument("boards", nargs=-1)
@click.option('--all', 'everything', is_flag=True, help='every configured board, plus the home page')
def rebuild(boards, everything):
    """ rewrites the static pages of BOARDS from the database """
    if everything:
        boards = cfg.boards
    if not boards:
        raise click.UsageError('name at least one board, or pass --all')
    for board in boards:
        if board not in cfg.boards:
            raise click.BadParameter('no such board: %s' % board, param_hint='BOARDS')
        threads = regen.regenerate_board(board)
        click.echo('/%s/: %s thread page%s' % (board, threads, '' if threads == 1 else 's'))
    if everything:
        regen.regenerate_home()


@cli.command()
def home():
    """ rewrites the board list at the site root """
    click.echo(regen.regenerate_home())


if __name__ == '__main__':
    cli()
