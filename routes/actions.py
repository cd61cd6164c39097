"""
routes/actions.py — Herbal action reference list.

Provides:
- GET /admin/actions/ — All actions with usage counts
- GET|POST /admin/actions/new — Create an action
- GET|POST /admin/actions/<id>/edit — Rename / describe an action
- POST /admin/actions/<id>/delete — Delete an unused action
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, abort

from plant_database import (
    get_herbal_actions, get_herbal_action,
    create_herbal_action, update_herbal_action, delete_herbal_action,
)

actions_bp = Blueprint('actions', __name__, url_prefix='/admin/actions')


@actions_bp.route('/')
def index():
    return render_template('actions/index.html', actions=get_herbal_actions())


@actions_bp.route('/new', methods=['GET', 'POST'])
def new_action():
    if request.method == 'GET':
        return render_template('actions/form.html', action=None, values={})

    name = request.form.get('name', '').strip()
    description = request.form.get('description', '').strip()

    action_id, error = create_herbal_action(name, description)
    if action_id:
        flash(f"Action '{name}' created.", 'success')
        return redirect(url_for('actions.index'))

    flash(error, 'error')
    return render_template('actions/form.html', action=None,
                           values={'name': name, 'description': description}), 400


@actions_bp.route('/<int:action_id>/edit', methods=['GET', 'POST'])
def edit_action(action_id):
    action = get_herbal_action(action_id)
    if not action:
        abort(404)

    if request.method == 'GET':
        return render_template('actions/form.html', action=action, values=action)

    name = request.form.get('name', '').strip()
    description = request.form.get('description', '').strip()

    success, error = update_herbal_action(action_id, name, description)
    if success:
        flash("Action updated.", 'success')
        return redirect(url_for('actions.index'))

    flash(error, 'error')
    return render_template('actions/form.html', action=action,
                           values={'name': name, 'description': description}), 400


@actions_bp.route('/<int:action_id>/delete', methods=['POST'])
def remove_action(action_id):
    success, error = delete_herbal_action(action_id)
    if success:
        flash("Action deleted.", 'success')
    elif error == "Action not found.":
        abort(404)
    else:
        flash(error, 'error')
    return redirect(url_for('actions.index'))
