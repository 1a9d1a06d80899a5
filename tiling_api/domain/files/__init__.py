"""Files domain - download of booking attachments"""
