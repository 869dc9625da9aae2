from flask import current_app
from werkzeug.utils import secure_filename
import logging
import os
import uuid

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = ('jpg', 'jpeg', 'png', 'webp')


class UploadError(ValueError):
    pass


def save_image(file_storage, subdir, prefix):
    """Save an uploaded image under static/<UPLOAD_FOLDER>/<subdir>/.

    Returns the path relative to the static folder.
    """
    if not file_storage:
        raise UploadError('কোনো ছবি আপলোড করা হয়নি')

    filename = secure_filename(file_storage.filename or '')
    ext = (filename.rsplit('.', 1)[-1] if '.' in filename else '').lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise UploadError('শুধুমাত্র JPG, PNG বা WEBP ছবি আপলোড করা যাবে')

    rel_dir = os.path.join(current_app.config['UPLOAD_FOLDER'], subdir)
    abs_dir = os.path.join(current_app.static_folder, rel_dir)
    os.makedirs(abs_dir, exist_ok=True)

    new_name = f"{prefix}_{uuid.uuid4().hex}.{ext}"
    file_storage.save(os.path.join(abs_dir, new_name))
    rel_path = f"{rel_dir}/{new_name}".replace('\\', '/')
    logger.info("Saved upload %s", rel_path)
    return rel_path


def remove_upload(rel_path, subdir):
    """Delete a previously saved upload; paths outside ``subdir`` are kept."""
    expected = f"{current_app.config['UPLOAD_FOLDER']}/{subdir}/"
    if not rel_path or not rel_path.startswith(expected):
        return
    abs_path = os.path.join(current_app.static_folder, rel_path)
    try:
        if os.path.isfile(abs_path):
            os.remove(abs_path)
    except OSError as e:
        logger.warning("Could not remove old upload %s: %s", rel_path, e)
