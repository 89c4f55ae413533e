import os
import uuid
import cv2
from py4web import action, request, abort, URL
from ombott import static_file
from .common import session, T
from .settings import UPLOADS_FOLDER, ALLOWED_EXTENSIONS, HISTORY_LIMIT
from .modules.marker_locator.active_config import get_active_config, set_active_config, reset_active_config
from .modules.marker_locator.config_codec import API_VERSION, config_from_dict, config_from_json, config_to_dict, default_config
from .modules.marker_locator.errors import ConfigInvalidError, InvalidInputError, StatusCode
from .modules.marker_locator.service import locate_file, parse_capacity
from .modules.demo_utils import create_marker_image

def _config_error(e):
    return dict(status=StatusCode.CONFIG_ERROR.name, error=str(e), field=e.field)

# Dashboard
@action('index')
@action.uses(session, T)
def index():
    return dict(
        api_version=API_VERSION,
        allowed_extensions=ALLOWED_EXTENSIONS,
        history=session.get('locate_history', [])
    )

# Active configuration
@action('config', method=['GET', 'POST'])
@action.uses(session)
def config():
    """
    GET returns the active config. POST merges a partial JSON config over the
    active one (the same base a per-call config on locate uses) and installs it.
    """
    if request.method == 'GET':
        return dict(status=StatusCode.OK.name, config=config_to_dict(get_active_config()))

    try:
        cfg = config_from_dict(request.json or {}, base=get_active_config())
    except ConfigInvalidError as e:
        return _config_error(e)

    failure = set_active_config(cfg)
    if failure is not None:
        return dict(status=StatusCode.CONFIG_ERROR.name, error=failure.message, field=failure.field)
    return dict(status=StatusCode.OK.name, config=config_to_dict(cfg))

@action('config/default')
def config_default():
    return dict(status=StatusCode.OK.name, config=config_to_dict(default_config()))

@action('config/reset', method='POST')
def config_reset():
    return dict(status=StatusCode.OK.name, config=config_to_dict(reset_active_config()))

# Marker locator
@action('locate', method='POST')
@action.uses(session)
def locate():
    if 'locate_history' not in session:
        session['locate_history'] = []

    try:
        uploaded_file = request.files.get('image')
        if not uploaded_file or not uploaded_file.filename:
            return dict(status=StatusCode.INVALID_ARGUMENT.name, error="No file selected")

        ext = os.path.splitext(uploaded_file.filename)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            return dict(status=StatusCode.INVALID_ARGUMENT.name, error="Invalid file type")

        # Per-call override, merged over the active config; otherwise the
        # active config snapshot is used as is
        cfg = None
        raw_config = request.forms.get('config')
        if raw_config:
            try:
                cfg = config_from_json(raw_config, base=get_active_config())
            except ConfigInvalidError as e:
                return _config_error(e)

        try:
            capacity = parse_capacity(request.forms.get('capacity'))
        except InvalidInputError as e:
            return dict(status=StatusCode.INVALID_ARGUMENT.name, error=str(e))
        debug = request.forms.get('debug') in ('1', 'true', 'on')

        safe_filename = f"{uuid.uuid4()}{ext}"
        file_path = os.path.join(UPLOADS_FOLDER, safe_filename)
        uploaded_file.save(file_path)

        response = locate_file(file_path, config=cfg, capacity=capacity, debug=debug)
        payload = response.to_dict()
        payload['image_url'] = URL('uploads', safe_filename)

        debug_filename = None
        if response.debug_image is not None and response.debug_image.size > 0:
            debug_filename = f"debug_{uuid.uuid4()}.png"
            cv2.imwrite(os.path.join(UPLOADS_FOLDER, debug_filename), response.debug_image)
            payload['debug_url'] = URL('uploads', debug_filename)

        history_item = {
            'image_filename': safe_filename,
            'debug_filename': debug_filename,
            'status': response.status.name,
            'num_markers': response.total_found,
            'timestamp': str(uuid.uuid4())
        }
        # Most recent first
        session['locate_history'].insert(0, history_item)
        session['locate_history'] = session['locate_history'][:HISTORY_LIMIT]

        return payload

    except Exception as e:
        import traceback
        traceback.print_exc()
        return dict(status=StatusCode.RUNTIME_ERROR.name, error=str(e))

# Synthetic marker frames
@action('sample_generator', method='POST')
def sample_generator():
    try:
        img_width = int(request.forms.get('img_width', 320))
        img_height = int(request.forms.get('img_height', 240))
        num_markers = int(request.forms.get('num_markers', 3))
        min_radius = int(request.forms.get('min_radius', 10))
        max_radius = int(request.forms.get('max_radius', 13))
        with_ring = request.forms.get('with_ring', 'on') == 'on'

        image, markers = create_marker_image(
            img_width, img_height, num_markers,
            min_radius=min_radius, max_radius=max_radius,
            with_ring=with_ring
        )

        filename = f"sample_{uuid.uuid4()}.png"
        cv2.imwrite(os.path.join(UPLOADS_FOLDER, filename), image)

        return dict(
            status=StatusCode.OK.name,
            image_filename=filename,
            image_url=URL('uploads', filename),
            markers=markers
        )

    except Exception as e:
        import traceback
        traceback.print_exc()
        return dict(status=StatusCode.RUNTIME_ERROR.name, error=str(e))

# Serve uploads
@action('uploads/<filename>')
def serve_upload(filename):
    # Prevent path traversal attacks
    if '..' in filename or '/' in filename or '\\' in filename:
        abort(403)
    filepath = os.path.join(UPLOADS_FOLDER, filename)
    if not os.path.abspath(filepath).startswith(os.path.abspath(UPLOADS_FOLDER)):
        abort(403)
    return static_file(filename, root=UPLOADS_FOLDER)
