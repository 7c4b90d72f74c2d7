from .map_to_dict import map_message_to_public, map_message_to_public_dict, map_group_to_public_dict
from .upload_to_cloudinary import upload_to_cloudinary
from .ids import parse_object_id
from .pagination import paginate, normalize_page, page_meta
