"""
Centralized Vietnamese UI messages.
All user-facing text in Vietnamese for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Chào mừng {name}',
    'logout_success': 'Đăng xuất thành công',
    'register_success': 'Đăng ký tài khoản thành công',
    'register_login_required': 'Đăng ký thành công. Vui lòng đăng nhập để tiếp tục',
    'password_updated': 'Đổi mật khẩu thành công',
    'password_reset_success': 'Đặt lại mật khẩu thành công. Vui lòng đăng nhập',
    'password_reset_requested': 'Nếu email tồn tại, hướng dẫn đặt lại mật khẩu đã được gửi',
    'account_found': 'Tìm thấy tài khoản thành công. Mật khẩu tạm thời đã được tạo',
    'booking_created': 'Đặt phòng thành công',
    'profile_updated': 'Cập nhật thông tin thành công',
    'booking_cancelled': 'Đã hủy đặt phòng thành công',
    'booking_status_updated': 'Cập nhật trạng thái đặt phòng thành công',

    # Error messages
    'invalid_credentials': 'Email hoặc mật khẩu không đúng',
    'account_inactive': 'Tài khoản của bạn đã bị vô hiệu hóa. Vui lòng liên hệ hỗ trợ',
    'session_expired': 'Phiên đăng nhập đã hết hạn. Vui lòng đăng nhập lại',
    'login_required': 'Vui lòng đăng nhập để truy cập trang này',
    'unauthorized': 'Bạn không có quyền truy cập trang này',
    'email_exists': 'Email đã được đăng ký',
    'invalid_reset_token': 'Liên kết đặt lại mật khẩu không hợp lệ hoặc đã hết hạn',
    'current_password_incorrect': 'Mật khẩu hiện tại không đúng',
    'account_not_found': 'Không tìm thấy tài khoản với số CMND/CCCD này',
    'not_found': 'Tài nguyên không tồn tại',
    'network_error': 'Không thể kết nối đến máy chủ. Vui lòng thử lại sau',
    'server_error': 'Lỗi máy chủ. Vui lòng thử lại sau',
    'search_failed': 'Tìm kiếm thất bại',
    'booking_failed': 'Đặt phòng thất bại. Vui lòng thử lại',
    'booking_in_progress': 'Yêu cầu đặt phòng đang được xử lý',
    'booking_not_cancellable': 'Chỉ có thể hủy đặt phòng đang chờ xác nhận hoặc đã xác nhận',
    'booking_update_failed': 'Không thể cập nhật đặt phòng',
    'reviews_failed': 'Không thể tải đánh giá',
    'unexpected_error': 'Đã xảy ra lỗi không xác định',

    # Validation messages
    'field_required': 'Trường này là bắt buộc',
    'identifier_required': 'Email là bắt buộc',
    'secret_required': 'Mật khẩu là bắt buộc',
    'invalid_email': 'Email không hợp lệ',
    'invalid_phone': 'Số điện thoại phải có 10-11 chữ số',
    'invalid_full_name': 'Họ tên phải từ 2-50 ký tự',
    'password_too_short': 'Mật khẩu phải có ít nhất 6 ký tự',
    'password_mismatch': 'Mật khẩu xác nhận không khớp',
    'invalid_id_number': 'Số CMND/CCCD phải có 9 hoặc 12 chữ số',
    'invalid_date': 'Ngày không hợp lệ',
    'check_in_past': 'Ngày nhận phòng không được ở trong quá khứ',
    'invalid_date_range': 'Ngày trả phòng phải sau ngày nhận phòng',
    'invalid_guests': 'Số khách phải ít nhất là 1',
    'invalid_booking_status': 'Trạng thái đặt phòng không hợp lệ',

    # Info messages
    'no_results': 'Không tìm thấy kết quả',
    'loading': 'Đang tải...',
    'reconnecting': 'Đang kết nối lại với máy chủ...',

    # Booking / payment states
    'status_pending': 'Chờ xác nhận',
    'status_confirmed': 'Đã xác nhận',
    'status_checked_in': 'Đã nhận phòng',
    'status_checked_out': 'Đã trả phòng',
    'status_cancelled': 'Đã hủy',
    'payment_pending': 'Chưa thanh toán',
    'payment_paid': 'Đã thanh toán',
    'payment_partial': 'Thanh toán một phần',
    'payment_refunded': 'Đã hoàn tiền',

    # Roles
    'role_customer': 'Khách hàng',
    'role_staff': 'Nhân viên',
    'role_admin': 'Quản trị viên',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
