# Delivery areas offered by the address form: district -> thanas.
THANAS_BY_DISTRICT = {
    'ঢাকা': [
        'ধানমন্ডি', 'গুলশান', 'বনানী', 'উত্তরা', 'মিরপুর', 'রামনা',
        'তেজগাঁও', 'ওয়ারী', 'সূত্রাপুর', 'কোতোয়ালী', 'শাহবাগ',
        'নিউমার্কেট', 'হাজারীবাগ', 'লালবাগ', 'চকবাজার',
    ],
    'চট্টগ্রাম': [
        'কোতোয়ালী', 'পাঁচলাইশ', 'ডবলমুরিং', 'চান্দগাঁও', 'বায়েজিদ',
        'হালিশহর', 'আগ্রাবাদ', 'সীতাকুণ্ড', 'মীরসরাই', 'সন্দ্বীপ',
        'বোয়ালখালী', 'আনোয়ারা', 'চন্দনাইশ', 'সাতকানিয়া',
    ],
    'সিলেট': [
        'সিলেট সদর', 'জৈন্তাপুর', 'কানাইঘাট', 'বিশ্বনাথ', 'বালাগঞ্জ',
        'বেলাইছড়ি', 'ফেঞ্চুগঞ্জ', 'গোলাপগঞ্জ', 'গোয়াইনঘাট', 'হবিগঞ্জ',
        'লাখাই', 'নবীগঞ্জ',
    ],
    'রাজশাহী': [
        'রাজশাহী সদর', 'বাগমারা', 'চারঘাট', 'দুর্গাপুর', 'গোদাগাড়ী',
        'মোহনপুর', 'পুঠিয়া', 'তানোর', 'নাটোর', 'সিংড়া', 'বড়াইগ্রাম',
        'গুরুদাসপুর',
    ],
    'খুলনা': [
        'খুলনা সদর', 'সোনাডাঙ্গা', 'খান জাহান আলী', 'কয়রা', 'পাইকগাছা',
        'রূপসা', 'তেরখাদা', 'বটিয়াঘাটা', 'দাকোপ', 'ডুমুরিয়া', 'ফকিরহাট',
        'মোল্লাহাট',
    ],
    'বরিশাল': [
        'বরিশাল সদর', 'আগৈলঝাড়া', 'বাবুগঞ্জ', 'বাকেরগঞ্জ', 'বানারীপাড়া',
        'গৌরনদী', 'হিজলা', 'মেহেন্দিগঞ্জ', 'মুলাদী', 'উজিরপুর', 'ভোলা',
        'চরফ্যাশন',
    ],
    'রংপুর': [
        'রংপুর সদর', 'বদরগঞ্জ', 'গঙ্গাচড়া', 'কাউনিয়া', 'মিঠাপুকুর',
        'পীরগঞ্জ', 'পীরগাছা', 'তারাগঞ্জ', 'কুড়িগ্রাম', 'ভুরুঙ্গামারী',
        'চিলমারী', 'রাজারহাট',
    ],
    'ময়মনসিংহ': [
        'ময়মনসিংহ সদর', 'ভালুকা', 'ত্রিশাল', 'মুক্তাগাছা', 'নান্দাইল',
        'তারাকান্দা', 'গৌরীপুর', 'গফরগাঁও', 'ঈশ্বরগঞ্জ', 'হালুয়াঘাট',
        'ফুলবাড়ীয়া', 'ধোবাউড়া',
    ],
}

DISTRICTS = list(THANAS_BY_DISTRICT)
