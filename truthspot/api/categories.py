from flask import Blueprint, abort, request

from truthspot.extensions import cache, pocketbase
from truthspot.helpers.category_selection import CategorySelection, CategorySelectionError
from truthspot.services.category_service import CategoryService

bp = Blueprint('categories', __name__, url_prefix="/categories")
tags_bp = Blueprint('tags', __name__, url_prefix="/tags")


@cache.memoize()
def cached_categories():
    return CategoryService(pocketbase).get_categories()


@cache.memoize()
def cached_tags():
    return CategoryService(pocketbase).get_tags()


@cache.memoize()
def cached_category_tags():
    return CategoryService(pocketbase).get_category_tags()


def _split_ids(value):
    return [item for item in (value or '').split(',') if item]


@bp.route("/")
def get_categories():
    """ Categories
    ---
    get:
        summary: All spot categories
        description: Every category with its icon and parent reference
        responses:
            200:
                description: Returns list of category objects
                content:
                  application/json:
                    schema: CategorySchema
    """
    return {'data': [category.get_dict() for category in cached_categories()]}


@bp.route("/roots")
def get_root_categories():
    selection = CategorySelection(cached_categories(), [], [])
    return {'data': [category.get_dict() for category in selection.roots()]}


@bp.route("/<category_id>/children")
def get_child_categories(category_id):
    selection = CategorySelection(cached_categories(), [], [])
    return {'data': [category.get_dict() for category in selection.children(category_id)]}


@bp.route("/tags")
def resolve_selection():
    """ Category Cascade
    ---
    get:
        summary: Resolve a category path and tag picks
        description: Validates a root-to-leaf category path (up to 3 levels) and
          returns the tags linked to the deepest category, the options for the
          next level, and whether a spot can be saved with this selection.
        parameters:
            - name: path
              in: query
              description: comma separated category ids, root first
              type: string
              required: false
            - name: tags
              in: query
              description: comma separated tag ids to select
              type: string
              required: false
        responses:
            200:
                description: Returns the resolved selection
            422:
                description: Path or tags are not a valid selection
    """
    selection = CategorySelection(cached_categories(), cached_tags(), cached_category_tags())
    try:
        selection.select_path(_split_ids(request.args.get('path')))
        selection.select_tags(_split_ids(request.args.get('tags')))
    except CategorySelectionError as e:
        abort(422, str(e))
    return {'data': selection.get_dict()}


@tags_bp.route("/")
def get_tags():
    return {'data': [tag.get_dict() for tag in cached_tags()]}
